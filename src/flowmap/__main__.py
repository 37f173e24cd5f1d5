"""Command-line interface."""
from flowmap.main import main

if __name__ == "__main__":
    main()
