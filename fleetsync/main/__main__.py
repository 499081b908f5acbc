"""
Main module entry point.

Runs the worker and its beat scheduler: python -m fleetsync.main
"""

from .worker import main

if __name__ == "__main__":
    main()
