"""Allow ``python -m lockfile_worker``."""

import sys

from lockfile_worker.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
