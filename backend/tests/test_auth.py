from utils.hashing import get_password_hash, verify_password


def test_password_hashing():
    hashed = get_password_hash("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret-pass", "")
    assert not verify_password("s3cret-pass", "not-a-bcrypt-hash")


def test_login_returns_a_usable_token(client, cashier, password):
    res = client.post("/login", json={"email": cashier.email.upper(), "password": password})
    assert res.status_code == 200
    token = res.json()["access_token"]
    assert res.json()["token_type"] == "bearer"

    me = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == cashier.email
    assert me.json()["role"] == "cashier"


def test_login_rejects_bad_credentials(client, cashier):
    res = client.post("/login", json={"email": cashier.email, "password": "nope-nope"})
    assert res.status_code == 401
    assert res.json()["detail"] == "Invalid credentials"

    res = client.post("/login", json={"email": "ghost@apotek-sehat.com", "password": "whatever"})
    assert res.status_code == 401


def test_bad_token_is_rejected(client):
    res = client.get("/me", headers={"Authorization": "Bearer not-a-token"})
    assert res.status_code == 401


def test_owner_registers_staff(client, owner, auth_headers, password):
    body = {"name": "Dewi", "email": "Dewi@Apotek-Sehat.com", "password": "long-enough-1", "role": "warehouse"}
    res = client.post("/register", json=body, headers=auth_headers(owner))
    assert res.status_code == 201
    assert res.json()["email"] == "dewi@apotek-sehat.com"
    assert res.json()["role"] == "warehouse"

    again = client.post("/register", json=body, headers=auth_headers(owner))
    assert again.status_code == 400

    login = client.post("/login", json={"email": "dewi@apotek-sehat.com", "password": "long-enough-1"})
    assert login.status_code == 200


def test_register_is_owner_only(client, make_user, auth_headers):
    admin = make_user("admin")
    body = {"name": "X", "email": "x@apotek-sehat.com", "password": "long-enough-1"}
    assert client.post("/register", json=body, headers=auth_headers(admin)).status_code == 403


def test_register_validates_input(client, owner, auth_headers):
    headers = auth_headers(owner)
    short = {"name": "X", "email": "x@apotek-sehat.com", "password": "short"}
    assert client.post("/register", json=short, headers=headers).status_code == 422
    bad_role = {"name": "X", "email": "x@apotek-sehat.com", "password": "long-enough-1", "role": "manager"}
    assert client.post("/register", json=bad_role, headers=headers).status_code == 422


def test_user_list(client, owner, cashier, auth_headers):
    res = client.get("/users", headers=auth_headers(owner))
    assert res.status_code == 200
    assert [u["name"] for u in res.json()] == ["Cashier", "Owner"]
    assert client.get("/users", headers=auth_headers(cashier)).status_code == 403
