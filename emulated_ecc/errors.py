# emulated_ecc/errors.py
"""Error kinds raised while building emulated-field circuits."""


class SynthesisError(RuntimeError):
    """An invariant needed to lay out the circuit does not hold."""


class ConfigurationError(ValueError):
    """Limb width, limb count and moduli do not fit together."""


class UnsatisfiedError(AssertionError):
    """Raised by the mock prover when some emitted constraint does not hold."""

    def __init__(self, failures):
        self.failures = list(failures)
        lines = [str(f) for f in self.failures[:10]]
        if len(self.failures) > 10:
            lines.append(f"... and {len(self.failures) - 10} more")
        super().__init__(
            f"{len(self.failures)} constraint(s) not satisfied:\n" + "\n".join(lines)
        )
