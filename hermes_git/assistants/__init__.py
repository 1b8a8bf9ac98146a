"""
One module per hermes subcommand. Each is a thin layer over the prober,
the advisor, the plan parser and the executor.
"""
