#!/usr/bin/env python3
"""
Test Runner for Content Build Pipeline
======================================

Thin wrapper around pytest that knows the suite layout:
tests/unit for stage-level tests, tests/integration for full builds.
"""

import sys
import subprocess
import argparse
from pathlib import Path
from typing import List, Optional

PROJECT_ROOT = Path(__file__).parent

SUITES = {
    'unit': 'tests/unit',
    'integration': 'tests/integration',
    'all': 'tests',
}

COVERED_MODULES = [
    'base_classes',
    'build_errors',
    'build_site',
    'compression_codecs',
    'content_build_pipeline',
    'pipeline',
    'pipeline_configs',
    'pipeline_monitoring',
    'security_validation',
]


def build_command(args: argparse.Namespace) -> List[str]:
    """Translate runner options into a pytest command line"""
    cmd = [sys.executable, "-m", "pytest", SUITES[args.suite]]

    if args.verbose:
        cmd.append("-v")
    if args.exitfirst:
        cmd.append("-x")
    if args.show_output:
        cmd.append("-s")
    if args.test:
        cmd.extend(["-k", args.test])

    if args.coverage:
        for module in COVERED_MODULES:
            cmd.append(f"--cov={module}")
        cmd.extend(["--cov-report=html", "--cov-report=term-missing"])

    return cmd


def run_tests(args: argparse.Namespace) -> int:
    """Run pytest with specified options"""
    cmd = build_command(args)
    print(f"Running: {' '.join(cmd)}")
    result = subprocess.run(cmd, cwd=PROJECT_ROOT)
    return result.returncode


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run tests for the content build pipeline")

    parser.add_argument("suite", nargs="?", default="all", choices=sorted(SUITES),
                        help="Which suite to run (default: all)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Verbose test output")
    parser.add_argument("-c", "--coverage", action="store_true",
                        help="Generate coverage report")
    parser.add_argument("-t", "--test", type=str,
                        help="Run specific test by name pattern")
    parser.add_argument("-x", "--exitfirst", action="store_true",
                        help="Stop at the first failing test")
    parser.add_argument("-s", "--show-output", action="store_true",
                        help="Show print statements during tests")
    parser.add_argument("--install-deps", action="store_true",
                        help="Install the package with its test extra first")

    args = parser.parse_args(argv)

    if args.install_deps:
        print("Installing test dependencies...")
        subprocess.run([sys.executable, "-m", "pip", "install", "-e", ".[test]"],
                       cwd=PROJECT_ROOT, check=True)

    exit_code = run_tests(args)

    if args.coverage and exit_code == 0:
        print("\nCoverage report generated in htmlcov/index.html")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
