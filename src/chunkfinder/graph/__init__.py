"""Graph core: node/link model, role detection, feature index and set queries.

Nodes carry an opaque integer group. Two groups are singled out as the "file"
and "chunk" layers; every other node is a feature. The index maps each
feature to the chunks it reaches directly or through a file.
"""

