import sys

from takeflow.cli import main

if __name__ == "__main__":
    sys.exit(main())
