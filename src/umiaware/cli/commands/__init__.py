"""umiaware CLI subcommands."""
