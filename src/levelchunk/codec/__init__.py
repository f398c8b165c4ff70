"""Binary codecs for level files: primitives, flats, resources, container."""
