"""Allow ``python -m scene.cli`` execution."""

from scene.cli.artists import main

main()
