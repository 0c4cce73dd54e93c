"""
common_sync package

This package vendors the generated rabbit_common sources from the upstream
RabbitMQ repositories into this checkout, then tags and publishes the result.

Key responsibilities are split across modules:
- `config.py`: load the YAML sync configuration into typed settings
- `mirrors.py`: clone / fast-forward the upstream mirrors and resolve the release tag
- `build.py`: run (and clean) the server build that produces generated files
- `deps.py` / `vendor.py`: ask `read_common_deps` what to copy, then copy it
- `stamp.py`: write the version into `rabbit_common.app.src`
- `release.py`: human review gate, commit, tag and push
- `pipeline.py` / `cli.py`: orchestration and CLI entrypoint
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
