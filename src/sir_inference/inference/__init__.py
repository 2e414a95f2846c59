"""Gamma priors, binomial-chain likelihood, log posterior and a reference sampler."""
