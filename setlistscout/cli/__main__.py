"""Allow ``python -m setlistscout.cli`` execution."""

from setlistscout.cli.cache import main

main()
