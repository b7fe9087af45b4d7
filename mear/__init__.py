"""
MEAR — Multicentre Emergency Airway Registry core.

Clinical calculators, alert and protocol rules, the form state store and
draft persistence for the intubation registry.
"""

__version__ = "1.0.0"
