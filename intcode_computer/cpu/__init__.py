"""Decoder, disassembler and register set."""
