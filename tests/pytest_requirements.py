"""
Pytest plugin reporting which requirements the test docstrings reference.

Tests cite functional (FR-) and non-functional (NFR-) requirement ids in their
docstrings; with ``-v`` or ``--requirements-report`` the terminal summary
lists the tests covering each id.
"""

import re
from collections import defaultdict

import pytest

REQUIREMENT_PATTERN = re.compile(r"\b((?:NFR|FR)-\d+(?:\.\d+)?)\b", re.IGNORECASE)


class RequirementsCollector:
    """Collects requirement references from test docstrings."""

    def __init__(self):
        self.test_requirements: dict[str, set[str]] = {}
        self.requirement_tests: dict[str, list[str]] = defaultdict(list)

    def extract_requirements(self, docstring: str | None) -> set[str]:
        if not docstring:
            return set()
        return {req.upper() for req in REQUIREMENT_PATTERN.findall(docstring)}

    def collect_test_requirements(self, item) -> None:
        test_name = f"{item.module.__name__}::{item.name}"
        if test_name in self.test_requirements:
            return
        requirements = self.extract_requirements(item.function.__doc__)
        if not requirements:
            return
        self.test_requirements[test_name] = requirements
        for req in requirements:
            self.requirement_tests[req].append(test_name)


requirements_collector = RequirementsCollector()


def _sort_key(requirement: str) -> tuple[str, list[int]]:
    prefix, _, number = requirement.partition("-")
    return prefix, [int(part) for part in number.split(".")]


def pytest_addoption(parser):
    parser.addoption(
        "--requirements-report",
        action="store_true",
        default=False,
        help="Show requirements coverage report even without verbose mode",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_runtest_setup(item):
    requirements_collector.collect_test_requirements(item)


@pytest.hookimpl(trylast=True)
def pytest_terminal_summary(terminalreporter, exitstatus, config):
    if not requirements_collector.test_requirements:
        return
    if not (
        config.getoption("verbose") >= 1 or config.getoption("requirements_report")
    ):
        return

    terminalreporter.section("Requirements Coverage")
    for req in sorted(requirements_collector.requirement_tests, key=_sort_key):
        terminalreporter.write_line(f"  {req}:")
        for test in requirements_collector.requirement_tests[req]:
            terminalreporter.write_line(f"    ✓ {test.split('::')[-1]}")

    terminalreporter.write_line("")
    terminalreporter.write_line(
        f"  Tests with requirements: {len(requirements_collector.test_requirements)}"
    )
    terminalreporter.write_line(
        f"  Requirements covered: {len(requirements_collector.requirement_tests)}"
    )
