"""Shared constants."""

# "@NAME@" as a source locator means: read the real path from $NAME.
INDIRECTION_MARKER = "@"

# Emitted modules implement the contract on top of this base type.
BASE_TYPE = "java/lang/Object"

# Suffix of synthesized type names: <Contract>$CG<n>
GENERATED_SUFFIX = "$CG"
