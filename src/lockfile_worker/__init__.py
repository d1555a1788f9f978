"""
Lockfile Worker - periodic worker coordinated through a shared lock directory.

Cooperating instances poll the same directory; whoever creates the next
numbered lock file runs the unit of work, and locks held past their timeout
are taken over by the next poller.
"""

from lockfile_worker.core.version import __version__

__all__ = ["__version__"]
