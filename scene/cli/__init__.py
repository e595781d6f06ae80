# =============================================================================
# scene/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line access to the artist image and search services, for
# operators and developers working outside the browser client:
#
#   resolve     Resolve image URLs for one or more artist names through
#               the tiered resolver (cache → artists table → batch endpoint).
#   show-image  Print the first platform-sourced image recorded on any
#               show for one artist.
#   search      Run one interactive-style artist search (local then remote).
#   backfill    Run the image backfill job once (stale sweep + Spotify).
#
# Architecture Notes:
#   - argparse, like the rest of the tooling.
#   - scene.main is imported inside the command runner, after argument
#     parsing, so `--help` stays fast and configuration errors surface as
#     a clean message instead of a traceback at import time.
# =============================================================================

"""CLI tools for Scene.

- ``python -m scene.cli resolve "Bicep" "Bonobo"``
- ``python -m scene.cli show-image "Bicep"``
- ``python -m scene.cli search bic``
- ``python -m scene.cli backfill``
"""
