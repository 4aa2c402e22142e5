"""
Core logic for talking to S3-compatible storage.

This module is framework-agnostic - it doesn't import FastAPI, httpx,
or any infrastructure concerns. Everything here is a pure function of
its inputs, so signing and parsing can be tested without a network.
"""
