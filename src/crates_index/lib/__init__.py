"""Core library: record codec, crate files, tree layout, and git mirroring.

Primary modules:
- ``crates_index.lib.records`` for the per-line JSON codec.
- ``crates_index.lib.paths`` for the sharded tree layout.
- ``crates_index.lib.mirror`` for keeping the local checkout current.
- ``crates_index.lib.index`` for the combined ``Index`` facade.
"""
