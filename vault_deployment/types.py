import click
from eth_utils import to_checksum_address

from vault_deployment.constants import MAX_UINT256, MAX_UINT256_ALIAS, PERCENT_DIVISOR


class ChecksumAddress(click.ParamType):
    name = "checksum_address"

    def convert(self, value, param, ctx):
        try:
            value = to_checksum_address(value=value)
        except ValueError:
            self.fail(f"{value} is not a valid ethereum address", param, ctx)
        else:
            return value


class Uint256(click.ParamType):
    """Unsigned 256-bit integer; accepts 'max' for the largest value."""

    name = "uint256"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            ivalue = value
        elif str(value).strip().lower() == MAX_UINT256_ALIAS:
            return MAX_UINT256
        else:
            try:
                ivalue = int(value)
            except ValueError:
                self.fail(f"{value} is not a valid integer", param, ctx)
        if not 0 <= ivalue <= MAX_UINT256:
            self.fail(f"{value} is out of range for uint256", param, ctx)
        return ivalue


class BasisPoints(click.ParamType):
    name = "basis_points"

    def convert(self, value, param, ctx):
        try:
            ivalue = int(value)
        except ValueError:
            self.fail(f"{value} is not a valid integer", param, ctx)
        if not 0 <= ivalue <= PERCENT_DIVISOR:
            self.fail(
                f"{value} is outside the allowed range of 0 to {PERCENT_DIVISOR} basis points",
                param,
                ctx,
            )
        return ivalue
