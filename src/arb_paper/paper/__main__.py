"""Allow running the ledger CLI as: python -m arb_paper.paper [--config path] <command>."""

from arb_paper.paper.runner import main

raise SystemExit(main())
