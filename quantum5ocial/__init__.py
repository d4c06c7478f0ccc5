"""Quantum5ocial API - social network for the quantum-technology community."""
