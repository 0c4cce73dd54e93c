"""Allow `python -m common_sync`."""

from common_sync.cli import main

raise SystemExit(main())
