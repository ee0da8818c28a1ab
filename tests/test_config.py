# tests/test_config.py
import dataclasses

import pytest

from emulated_ecc import BN254, ConfigurationError, IntegerChipConfig, bn254_config
from emulated_ecc.utils import bn_to_limbs_le, decompose_bn, limbs_to_bn


class TestBn254Config:
    """Derived constants of the BN254 base field emulated in its scalar field."""

    def test_layout(self, config):
        assert config.native_modulus == BN254.scalar_modulus
        assert config.w_modulus == BN254.base_modulus
        assert config.limbs == 4
        assert config.limb_width == 68
        assert config.limb_modulus == 1 << 68
        assert config.integer_modulus == 1 << 272

    def test_overflow_constants(self, config):
        assert config.overflow_limit == 64
        assert config.overflow_threshold == 32

    def test_bit_lengths(self, config):
        """Bit widths of the w-ceil, n-floor and quotient leading limbs."""
        assert config.w_ceil_bits == 254
        assert config.n_floor_bits == 253
        assert config.d_bits == 271

    def test_range_tables(self, config):
        """Leading tables are sized so each leading limb is fully covered."""
        assert config.range_bits == {
            "common": 17,
            "w_ceil_leading": 16,
            "n_floor_leading": 15,
            "d_leading": 16,
        }

    def test_modulus_limbs(self, config):
        assert limbs_to_bn(list(config.w_modulus_limbs_le), 68) == config.w_modulus
        assert limbs_to_bn(list(config.neg_w_limbs_le), 68) == (1 << 272) - config.w_modulus
        assert all(limb < 1 << 68 for limb in config.neg_w_limbs_le)

    def test_limb_modulus_exps(self, config):
        """Powers of 2^68 reduced into the native field."""
        n = config.native_modulus
        assert config.limb_modulus_exps[0] == 1
        assert config.limb_modulus_exps[1] == 1 << 68
        assert config.limb_modulus_exps[3] == pow(2, 204, n)

    def test_w_native(self, config):
        assert config.w_native == config.w_modulus % config.native_modulus

    def test_is_hashable_and_comparable(self, config):
        assert bn254_config() == config
        assert hash(bn254_config()) == hash(config)


class TestConfigValidation:
    """Every bound violation raises ConfigurationError at construction."""

    def test_odd_limb_count_rejected(self, config):
        with pytest.raises(ConfigurationError, match="limbs must be even"):
            dataclasses.replace(config, limbs=3)

    def test_small_modulus_rejected(self):
        with pytest.raises(ConfigurationError, match="does not fill"):
            IntegerChipConfig(native_modulus=BN254.scalar_modulus, w_modulus=(1 << 127) - 1)

    def test_overflow_limit_too_large(self):
        with pytest.raises(ConfigurationError):
            bn254_config(overflow_limit_shift=10)

    def test_chunks_must_fit_one_row(self):
        with pytest.raises(ConfigurationError, match="one row"):
            bn254_config(chunks_per_limb=5)

    def test_replace_revalidates(self, config):
        """dataclasses.replace goes through validation again."""
        same = dataclasses.replace(config, overflow_limit_shift=6)
        assert same == config

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            bn254_config(limbs=6)


class TestLimbHelpers:
    """Limb and chunk helpers in utils."""

    def test_bn_to_limbs_roundtrip(self):
        value = (123 << 204) + (45 << 136) + (6 << 68) + 7
        assert bn_to_limbs_le(value, 68, 4) == [7, 6, 45, 123]
        assert limbs_to_bn([7, 6, 45, 123], 68) == value

    def test_leading_limb_keeps_high_bits(self):
        """The top limb absorbs everything above the lower limbs."""
        value = 1 << 280
        limbs = bn_to_limbs_le(value, 68, 4)
        assert limbs[:3] == [0, 0, 0]
        assert limbs[3] == 1 << 76

    def test_decompose_bn(self):
        chunks = decompose_bn(0x1_2345_6789, 17, 3)
        assert sum(c * coeff for c, coeff in chunks) == 0x1_2345_6789
        assert all(c < 1 << 17 for c, _ in chunks)
        assert [coeff for _, coeff in chunks] == [1, 1 << 17, 1 << 34]
