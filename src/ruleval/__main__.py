"""Entry point for 'python -m ruleval' command."""

from ruleval.cli import main

if __name__ == "__main__":
    main()
