"""
I/O Layer

Live-connection adapters, the incremental querier state machine and batch
materialization.
"""
