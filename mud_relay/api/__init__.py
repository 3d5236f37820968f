"""HTTP surface for MUD Relay."""
