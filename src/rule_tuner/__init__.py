"""
rule-tuner

Self-tuning improvement pipeline for the job-posting rule set.
"""

__version__ = "0.1.0"
