"""Allow ``python -m fixity``."""

from fixity.cli import main

if __name__ == "__main__":
    main()
