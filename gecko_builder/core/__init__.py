"""Core data model, config loading, and code line generation.

WHY: The core package holds the stable heart of the builder: the IR
dataclasses and the logic that turns patch entries into Gecko code lines.
Formatters and the CLI consume its output and must not reach into it.

HOW: ir.py defines the data structures, codes.py loads them from
codes.json, packer.py pads instruction streams, encoder.py produces the
lines for each patch kind, and sequencer.py strings everything together.

RULES:
- IR dataclasses are frozen, built once per run, never mutated
- Encoding is format-agnostic, no text/GCT specifics here
- File and toolchain access goes through toolchain.resolver only
"""
