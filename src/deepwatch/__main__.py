"""Allow running deepwatch as ``python -m deepwatch``."""

from deepwatch import main

if __name__ == "__main__":
    main()
