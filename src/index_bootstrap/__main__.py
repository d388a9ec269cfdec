"""Entry point for ``python -m index_bootstrap``."""

from .cli import main

if __name__ == "__main__":
    main()
