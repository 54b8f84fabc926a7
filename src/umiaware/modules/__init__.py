"""umiaware pipeline modules.

- umi_distance     -> Hamming distance between UMIs
- umi_graph        -> similarity graph and connected-component grouping
- consensus        -> inferred UMI per group
- duplicate_sets   -> DuplicateSet and the positional duplicate-set source
- umi_splitter     -> UMI-aware splitting iterator
- strategies       -> named duplicate-set strategies
- duplicate_marker -> duplicate flagging over an alignment file
"""
