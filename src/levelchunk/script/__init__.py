"""Edit scripts: declarative lists of operations applied to one level."""
