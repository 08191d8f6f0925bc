# =============================================================================
# concert_groups/cli/__init__.py — CLI Module Overview
# =============================================================================
#
# Operator-facing command line for the concert group formation engine.
# The engine has no HTTP surface: an external scheduler invokes
#
#     python -m concert_groups.cli run
#
# once per day.  Subcommands (run_job.py):
#
#   init-db   Create the users, user_relations, artists, user_artists,
#             concert_groups and concert_group_members tables.
#   run       One formation pass; prints a summary, exits non-zero when
#             any artist failed.
# =============================================================================
