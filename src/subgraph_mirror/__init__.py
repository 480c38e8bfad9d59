"""In-process mirror of a blockchain subgraph, kept current by incremental sync."""
