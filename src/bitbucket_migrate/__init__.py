"""Bitbucket Migration Tool

Copies branches and pull requests from a Bitbucket Cloud repository to a
GitLab project through both services' REST APIs. Re-running a migration is
safe: anything already present on GitLab is skipped.
"""

__version__ = '0.1.0'

from .cli import main

__all__ = ['main']
