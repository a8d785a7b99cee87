"""ReleaseOS — release pipeline for the bootable installer package.

Stages the source tree, builds and lints the package, maps files into an
install root, provisions a test image for the installer smoke test, and
publishes the artifact, all as a BuildOS task graph.
"""

__version__ = "0.1.0"
