"""pytest-covrunner: Istanbul-style coverage for pytest suites.

pytest-covrunner runs a suite of test files in-process with pytest and
instruments the project's source files as they are imported, recording
statement, branch and function hit counts. Files no test imported still show
up in the reports with zero coverage, and generated files that ship a source
map are reported against their original sources.

Example:
    Put a ``coverconfig.json`` next to the tests::

        {"enabled": true, "relativeSourcePath": "../src", "reports": ["html", "text-summary"]}

    and run them::

        from pytest_covrunner.harness import configure, run

        configure(['-q'])
        run('tests', lambda error, failures: print(error or f'{failures} failed'))
"""

from __future__ import annotations


__version__ = '0.1.0'
__all__ = ['__version__']
