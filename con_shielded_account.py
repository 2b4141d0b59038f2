"""
SHIELDED ACCOUNT

Each owner holds one opaque commitment per asset. Amounts moved between
accounts never appear on-chain; the contract enforces only algebraic
conservation:
  - C_new == C_old * C_amount           (deposit, incoming side of transfer)
  - C_old == C_new * C_amount           (withdraw, outgoing side of transfer)

Every operation that touches an owner advances that owner's nonce by one,
including incoming transfers. Clients compare the nonce with their local
ledger to learn whether they missed an operation.
"""

# -----------------------------------------------------------------------------
# Parameters & Helpers
# -----------------------------------------------------------------------------

p = 2**255 - 19  # commitment modulus, shared with shielded_helper

ZERO_COMMITMENT = 1  # multiplicative identity

ASSETS = ['usdc', 'xaapl', 'xtsla', 'xgoog']

def verify_commitment_addition(old_commitment: int, amount_commitment: int, new_commitment: int):
    return new_commitment == (old_commitment * amount_commitment) % p

def verify_commitment_subtraction(old_commitment: int, new_commitment: int, amount_commitment: int):
    return old_commitment == (new_commitment * amount_commitment) % p

# -----------------------------------------------------------------------------
# State
# -----------------------------------------------------------------------------

# (address, asset) -> {'commitment': int, 'last_updated': int, 'updates': int}
balance_commitments = Hash()

# address -> int (monotonic)
nonces = Hash(default_value=0)

# asset -> int, public deposited minus withdrawn
totals = Hash(default_value=0)

metadata = Hash()

next_tx_id = Variable()

# Events
DepositEvent = LogEvent('Deposit', {
    'owner': {'type': str, 'idx': True},
    'asset': {'type': str, 'idx': True},
    'amount': {'type': int},
    'tx_id': {'type': int, 'idx': True}
})

WithdrawEvent = LogEvent('Withdraw', {
    'owner': {'type': str, 'idx': True},
    'asset': {'type': str, 'idx': True},
    'amount': {'type': int},
    'tx_id': {'type': int, 'idx': True}
})

ShieldedTransferEvent = LogEvent('ShieldedTransfer', {
    'from': {'type': str, 'idx': True},
    'to': {'type': str, 'idx': True},
    'asset': {'type': str},
    'amount_commitment': {'type': str},
    'tx_id': {'type': int, 'idx': True}
})

# -----------------------------------------------------------------------------
# Construction
# -----------------------------------------------------------------------------

@construct
def seed():
    metadata['name'] = "Shielded Account"
    metadata['operator'] = ctx.caller
    next_tx_id.set(1)

# -----------------------------------------------------------------------------
# Views
# -----------------------------------------------------------------------------

@export
def get_assets():
    return ASSETS

@export
def get_nonce(address: str):
    return nonces[address]

@export
def get_total(asset: str):
    assert asset in ASSETS, 'Unknown asset'
    return totals[asset]

@export
def get_balance_commitment(address: str, asset: str):
    assert asset in ASSETS, 'Unknown asset'
    data = balance_commitments[address, asset]
    if data is None:
        return {
            'exists': False,
            'commitment': ZERO_COMMITMENT,
            'last_updated': 0,
            'updates': 0
        }
    return {
        'exists': True,
        'commitment': data['commitment'],
        'last_updated': data['last_updated'],
        'updates': data['updates']
    }

# -----------------------------------------------------------------------------
# Internals
# -----------------------------------------------------------------------------

def bump_nonce(addr: str, provided: int):
    assert provided == nonces[addr] + 1, 'Bad nonce'
    nonces[addr] = provided

def advance_nonce(addr: str):
    nonces[addr] = nonces[addr] + 1

def next_tx():
    tid = next_tx_id.get()
    next_tx_id.set(tid + 1)
    return tid

def current_commitment(addr: str, asset: str):
    data = balance_commitments[addr, asset]
    return data['commitment'] if data else ZERO_COMMITMENT

def write_commitment(addr: str, asset: str, commitment: int):
    data = balance_commitments[addr, asset]
    balance_commitments[addr, asset] = {
        'commitment': commitment,
        'last_updated': block_num,
        'updates': (0 if data is None else data['updates']) + 1
    }

# -----------------------------------------------------------------------------
# Core
# -----------------------------------------------------------------------------

@export
def deposit(asset: str,
            amount: int,
            amount_commitment: int,
            new_commitment: int,
            nonce: int):
    assert asset in ASSETS, 'Unknown asset'
    assert amount > 0, 'Invalid amount'

    bump_nonce(ctx.caller, nonce)

    assert verify_commitment_addition(current_commitment(ctx.caller, asset), amount_commitment, new_commitment), 'Commitment mismatch'

    write_commitment(ctx.caller, asset, new_commitment)
    totals[asset] = totals[asset] + amount

    DepositEvent({
        'owner': ctx.caller,
        'asset': asset,
        'amount': amount,
        'tx_id': next_tx()
    })

@export
def withdraw(asset: str,
             amount: int,
             amount_commitment: int,
             new_commitment: int,
             nonce: int):
    assert asset in ASSETS, 'Unknown asset'
    assert amount > 0, 'Invalid amount'
    assert balance_commitments[ctx.caller, asset] is not None, 'No commitment to withdraw from'

    bump_nonce(ctx.caller, nonce)

    assert verify_commitment_subtraction(current_commitment(ctx.caller, asset), new_commitment, amount_commitment), 'Commitment mismatch'

    write_commitment(ctx.caller, asset, new_commitment)
    totals[asset] = totals[asset] - amount

    WithdrawEvent({
        'owner': ctx.caller,
        'asset': asset,
        'amount': amount,
        'tx_id': next_tx()
    })

@export
def transfer(to: str,
             asset: str,
             amount_commitment: int,
             new_sender_commitment: int,
             new_receiver_commitment: int,
             nonce: int):
    assert asset in ASSETS, 'Unknown asset'
    assert to != ctx.caller, 'Cannot transfer to self'
    assert balance_commitments[ctx.caller, asset] is not None, 'Sender has no commitment'

    bump_nonce(ctx.caller, nonce)
    advance_nonce(to)

    assert verify_commitment_subtraction(current_commitment(ctx.caller, asset), new_sender_commitment, amount_commitment), 'Sender commitment mismatch'
    assert verify_commitment_addition(current_commitment(to, asset), amount_commitment, new_receiver_commitment), 'Receiver commitment mismatch'

    write_commitment(ctx.caller, asset, new_sender_commitment)
    write_commitment(to, asset, new_receiver_commitment)

    ShieldedTransferEvent({
        'from': ctx.caller,
        'to': to,
        'asset': asset,
        'amount_commitment': hex(amount_commitment),
        'tx_id': next_tx()
    })
