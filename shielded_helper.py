import hashlib
import secrets

# ---- Chain-constant parameters & helpers (mirror con_shielded_account) -------

p = 2**255 - 19

ZERO_COMMITMENT = 1

def sha3_hex(s: str) -> str:
    # Same digest the contract runtime returns from hashlib.sha3
    return hashlib.sha3_256(s.encode("utf-8")).hexdigest()

def map_to_base(tag: str) -> int:
    return int(sha3_hex("SHACCT:gen:" + tag)[:32], 16) % (p - 3) + 2

g = map_to_base("g")
h = map_to_base("h")

def mod_exp(base: int, exponent: int, modulus: int) -> int:
    return pow(base % modulus, exponent, modulus)

def mod_inverse(x: int, modulus: int = p) -> int:
    # modulus is prime, so Fermat
    return mod_exp(x, modulus - 2, modulus)

def value_to_exponent(value: int) -> int:
    return int(sha3_hex("AMT|" + str(int(value)))[:32], 16) % (p - 1)

def create_commitment(value: int, blinding: int) -> int:
    vexp = value_to_exponent(value)
    return (mod_exp(g, vexp, p) * mod_exp(h, blinding % (p - 1), p)) % p

def random_blinding() -> int:
    return secrets.randbelow(p - 1)

def existing(commitment):
    return commitment is not None and commitment != 0

# ---- Builders for con_shielded_account ---------------------------------------

def build_deposit(current_commitment: int,
                  amount: int,
                  amount_blinding: int = None,
                  next_nonce: int = 1):
    """
    Returns kwargs for contract.deposit(), minus `asset`:
        (amount, amount_commitment, new_commitment, nonce)
    """
    if amount_blinding is None:
        amount_blinding = random_blinding()
    if not existing(current_commitment):
        current_commitment = ZERO_COMMITMENT

    amount_commitment = create_commitment(amount, amount_blinding)
    return {
        'amount': int(amount),
        'amount_commitment': amount_commitment,
        'new_commitment': (current_commitment * amount_commitment) % p,
        'nonce': next_nonce
    }

def build_withdrawal(current_commitment: int,
                     amount: int,
                     amount_blinding: int = None,
                     next_nonce: int = 1):
    """
    Returns kwargs for contract.withdraw(), minus `asset`.
    The account must already hold a commitment for the asset.
    """
    if not existing(current_commitment):
        raise ValueError("Account must have an existing commitment")
    if amount_blinding is None:
        amount_blinding = random_blinding()

    amount_commitment = create_commitment(amount, amount_blinding)
    return {
        'amount': int(amount),
        'amount_commitment': amount_commitment,
        'new_commitment': (current_commitment * mod_inverse(amount_commitment)) % p,
        'nonce': next_nonce
    }

def build_transfer(sender_commitment: int,
                   receiver_commitment: int,
                   amount: int,
                   amount_blinding: int = None,
                   next_nonce: int = 1):
    """
    Returns kwargs for contract.transfer(), minus `to` and `asset`:
        (amount_commitment, new_sender_commitment, new_receiver_commitment, nonce)
    The amount itself never goes on-chain for a transfer.
    """
    if not existing(sender_commitment):
        raise ValueError("Sender must have an existing commitment")
    if not existing(receiver_commitment):
        receiver_commitment = ZERO_COMMITMENT
    if amount_blinding is None:
        amount_blinding = random_blinding()

    amount_commitment = create_commitment(amount, amount_blinding)
    return {
        'amount_commitment': amount_commitment,
        'new_sender_commitment': (sender_commitment * mod_inverse(amount_commitment)) % p,
        'new_receiver_commitment': (receiver_commitment * amount_commitment) % p,
        'nonce': next_nonce
    }
