"""Option pricing: payoffs, closed forms and Monte Carlo simulation."""
