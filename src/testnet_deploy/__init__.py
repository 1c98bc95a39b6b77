"""testnet-deploy - reserve, containerize and deploy static testnets"""

__version__ = "0.1.0"
