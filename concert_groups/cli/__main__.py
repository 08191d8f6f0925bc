"""Allow ``python -m concert_groups.cli`` execution."""

from concert_groups.cli.run_job import main

main()
