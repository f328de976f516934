"""
CLI package for synres.

Entry point is ``synres.cli.main:main``; each command lives in its own
module under ``cli/commands/``.
"""
