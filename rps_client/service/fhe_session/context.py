from openfhe import *

from rps_client.config import CRYPTO_CONFIG


# ============================================================================
# OpenFHE Context & Parameters
# ============================================================================

def create_openfhe_context():
    """
    Create a single-party BFVrns context for encrypting small integer moves.

    Returns:
        OpenFHE CryptoContext with public-key encryption enabled
    """
    parameters = CCParamsBFVRNS()

    # Moves are 0..3, any prime modulus with batching support works
    parameters.SetPlaintextModulus(CRYPTO_CONFIG["plain_modulus"])

    # Batch size must be power of 2 for BFV
    parameters.SetBatchSize(CRYPTO_CONFIG["batch_size"])

    parameters.SetMultiplicativeDepth(CRYPTO_CONFIG["multiplicative_depth"])

    cc = GenCryptoContext(parameters)
    cc.Enable(PKESchemeFeature.PKE)
    cc.Enable(PKESchemeFeature.KEYSWITCH)
    cc.Enable(PKESchemeFeature.LEVELEDSHE)

    return cc


def encrypt_value(cc, public_key, value: int):
    """Encrypt one value into slot 0 of a packed plaintext."""
    plaintext = cc.MakePackedPlaintext([int(value)])
    return cc.Encrypt(public_key, plaintext)


def decrypt_value(cc, secret_key, ciphertext) -> int:
    """Decrypt slot 0 of a packed ciphertext."""
    plaintext = cc.Decrypt(ciphertext, secret_key)
    plaintext.SetLength(1)
    return int(plaintext.GetPackedValue()[0])
