import pytest

from fiesta.auth.passwords import HASH_BYTES, SALT_BYTES, hash_password, verify_password


def test_hash_then_verify():
    stored = hash_password("correct horse")
    assert verify_password(stored, "correct horse")


def test_wrong_password_does_not_verify():
    stored = hash_password("correct horse")
    assert not verify_password(stored, "battery staple")
    assert not verify_password(stored, "Correct horse")


def test_stored_form_is_digest_dot_salt_hex():
    stored = hash_password("s3cret-pass")
    digest, salt = stored.split(".")
    assert len(bytes.fromhex(digest)) == HASH_BYTES
    assert len(bytes.fromhex(salt)) == SALT_BYTES


def test_salts_never_repeat():
    samples = [hash_password("same password") for _ in range(5)]
    assert len(set(samples)) == len(samples)
    assert len({s.split(".")[1] for s in samples}) == len(samples)


@pytest.mark.parametrize(
    "stored",
    [
        "",
        "no-separator-here",
        "zz.abcd",
        "abcd.zz",
        "a.b.c",
        "00" * HASH_BYTES + ".",
        "00" * HASH_BYTES + ".00",  # salt too short for argon2
        "00" * 8 + "." + "00" * 16,  # digest of the wrong length
    ],
)
def test_malformed_hash_fails_closed(stored):
    assert verify_password(stored, "whatever") is False


def test_empty_password_rejected():
    with pytest.raises(ValueError):
        hash_password("")
    assert verify_password(hash_password("x" * 8), "") is False


def test_legacy_sha512_hash_is_not_accepted():
    # sha512(password + salt) form produced by the old serverless handler
    import hashlib

    salt = "87df1238f9c908c7a1b2c3d4e5f60718"
    digest = hashlib.sha512(("adminpass" + salt).encode()).hexdigest()
    assert verify_password(f"{digest}.{salt}", "adminpass") is False


def test_unencodable_password_fails_closed():
    stored = hash_password("adminpass")
    assert verify_password(stored, "\ud800abc") is False
    with pytest.raises(ValueError):
        hash_password("\ud800abcdefgh")
