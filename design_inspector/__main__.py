"""Allow running the inspector with ``python -m design_inspector``."""

from .cli import main

if __name__ == "__main__":
    main()
