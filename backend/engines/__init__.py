"""Rule compiler engines.

extractor -> emitter -> compiler produce UI rule sets from a schema tree;
validator is the authoritative check; submission ties both together.
Import from the submodules directly.
"""
