"""substrate_payouts - claim pending staking payouts in weight-bounded batches."""

__version__ = "0.1.0"
