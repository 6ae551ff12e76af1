"""Allows `python -m inventory_service --host ... --port ... --cache ...`."""

from inventory_service.cli import main

if __name__ == "__main__":
    main()
