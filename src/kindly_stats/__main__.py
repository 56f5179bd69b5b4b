"""Allow `python -m kindly_stats`."""

from kindly_stats.cli import main

main()
