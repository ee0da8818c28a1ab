# tests/conftest.py
import random

import pytest

from emulated_ecc import BN254, BaseGate, IntegerChip, MockProver, NativeEccChip, RangeGate, bn254_config


@pytest.fixture(scope="session")
def config():
    return bn254_config()


@pytest.fixture
def base_gate(config):
    return BaseGate(config.native_modulus)


@pytest.fixture
def range_gate(base_gate, config):
    return RangeGate(base_gate, config)


@pytest.fixture
def ctx(base_gate):
    return base_gate.new_context()


@pytest.fixture
def integer_chip(range_gate, config):
    return IntegerChip(range_gate, config)


@pytest.fixture
def ecc_chip(integer_chip):
    return NativeEccChip(integer_chip, BN254)


@pytest.fixture
def rng():
    return random.Random(0x5EED)


@pytest.fixture
def prover(range_gate):
    """Factory fixture: run the mock prover over a context and return its failures."""

    def _verify(ctx):
        return MockProver(ctx, range_gate).verify()

    return _verify


@pytest.fixture
def assert_satisfied(range_gate):
    """Factory fixture: assert every emitted constraint of a context holds."""

    def _assert(ctx):
        MockProver(ctx, range_gate).assert_satisfied()

    return _assert
