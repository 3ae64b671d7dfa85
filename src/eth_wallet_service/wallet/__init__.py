"""Ethereum wallet core for eth-wallet-service.

Key pairs are generated with eth-account, private keys are held encrypted
in a keyed store, and every network call goes through an endpoint selector
that falls back across public JSON-RPC nodes.
"""
