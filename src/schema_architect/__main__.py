import sys

from schema_architect.cli import main

if __name__ == "__main__":
    sys.exit(main())
