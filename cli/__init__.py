"""Command line reporting of Neurio sensor metrics.

The typer application is ``cli.app:app``; it is not re-exported here so that
``cli.app`` keeps resolving to the module.
"""
