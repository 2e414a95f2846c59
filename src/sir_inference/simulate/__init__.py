"""Stochastic SIR transition, trajectory simulation and batch runs."""
