"""
Tests for profile completion, profile updates and the current account view.
"""


def test_me_returns_full_account(client, auth_headers):
    headers = auth_headers(phoneNumber="555-0100")
    response = client.get("/api/auth/me", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "User profile fetched successfully"

    user = data["user"]
    assert user["email"] == "a@x.com"
    assert user["phoneNumber"] == "555-0100"
    assert user["isVerified"] is True
    assert "createdAt" in user
    assert "passwordHash" not in user
    assert "password" not in user
    assert "verificationTokenHash" not in user


def test_complete_profile_contributor(client, auth_headers):
    headers = auth_headers()
    response = client.put("/api/auth/complete-profile", headers=headers, json={
        "contributorProfile": {
            "expertise": "Linguistics",
            "organizationName": "Lovelace Labs",
            "countryOfResidence": "UK",
        },
        "participantProfile": {"about": "should be ignored"},
        "gender": "prefer-not-to-say",
    })
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Profile completed successfully"

    user = data["user"]
    assert user["profileCompleted"] is True
    assert user["contributorProfile"]["expertise"] == "Linguistics"
    assert user["contributorProfile"]["organizationName"] == "Lovelace Labs"
    assert user["participantProfile"] is None

    me = client.get("/api/auth/me", headers=headers).json()["user"]
    assert me["gender"] == "prefer-not-to-say"
    assert me["profileCompleted"] is True


def test_complete_profile_participant(client, auth_headers):
    headers = auth_headers(role="participant")
    response = client.put("/api/auth/complete-profile", headers=headers, json={
        "participantProfile": {
            "interests": ["history", "music"],
            "languageFluent": ["English", "Yoruba"],
            "employmentYearsExperience": 4,
            "participateHoursPerWeek": 7.5,
        },
    })
    assert response.status_code == 200
    profile = response.json()["user"]["participantProfile"]
    assert profile["interests"] == ["history", "music"]
    assert profile["languageFluent"] == ["English", "Yoruba"]
    assert profile["participateHoursPerWeek"] == 7.5
    assert response.json()["user"]["contributorProfile"] is None


def test_complete_profile_rejects_negative_hours(client, auth_headers):
    headers = auth_headers(role="participant")
    response = client.put("/api/auth/complete-profile", headers=headers, json={
        "participantProfile": {"participateHoursPerWeek": -1},
    })
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "participantProfile.participateHoursPerWeek"


def test_complete_profile_requires_role_profile(client, auth_headers):
    headers = auth_headers()
    response = client.put("/api/auth/complete-profile", headers=headers, json={})
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Validation failed",
        "errors": [{"field": "contributorProfile", "message": "Contributor profile is required"}],
    }

    me = client.get("/api/auth/me", headers=headers).json()["user"]
    assert me["profileCompleted"] is False


def test_complete_profile_rejects_other_role_profile(client, auth_headers):
    headers = auth_headers(role="participant")
    response = client.put("/api/auth/complete-profile", headers=headers, json={
        "contributorProfile": {"expertise": "Linguistics"},
    })
    assert response.status_code == 400
    assert response.json()["errors"] == [
        {"field": "participantProfile", "message": "Participant profile is required"},
    ]

    me = client.get("/api/auth/me", headers=headers).json()["user"]
    assert me["profileCompleted"] is False
    assert me["contributorProfile"] is None


def test_complete_profile_requires_authentication(client):
    response = client.put("/api/auth/complete-profile", json={"contributorProfile": {"bio": "x"}})
    assert response.status_code == 401


def test_update_profile_allow_list(client, auth_headers):
    headers = auth_headers()
    response = client.put("/api/auth/update-profile", headers=headers, json={
        "firstName": "  Augusta ",
        "phoneNumber": "555-0199",
        "email": "evil@x.com",
        "role": "participant",
        "isVerified": False,
        "password": "hijacked",
    })
    assert response.status_code == 200
    user = response.json()["user"]
    assert response.json()["message"] == "Profile updated successfully"
    assert user["firstName"] == "Augusta"
    assert user["phoneNumber"] == "555-0199"
    assert user["email"] == "a@x.com"
    assert user["role"] == "contributor"
    assert user["isVerified"] is True

    # The password did not change
    login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert login.status_code == 200


def test_update_profile_merges_role_profile(client, auth_headers):
    headers = auth_headers()
    client.put("/api/auth/complete-profile", headers=headers, json={
        "contributorProfile": {"expertise": "Linguistics", "bio": "Researcher"},
    })
    response = client.put("/api/auth/update-profile", headers=headers, json={
        "contributorProfile": {"bio": "Lead researcher"},
    })
    profile = response.json()["user"]["contributorProfile"]
    assert profile["expertise"] == "Linguistics"
    assert profile["bio"] == "Lead researcher"


def test_update_profile_does_not_reset_completion(client, auth_headers):
    headers = auth_headers()
    client.put("/api/auth/complete-profile", headers=headers, json={"contributorProfile": {"bio": "x"}})
    response = client.put("/api/auth/update-profile", headers=headers, json={"lastName": "Byron"})
    assert response.json()["user"]["profileCompleted"] is True
    assert response.json()["user"]["lastName"] == "Byron"


def test_signup_to_completed_profile(client, register, notifier):
    response = register(email="a@x.com", role="contributor", password="secret1")
    assert response.status_code == 201
    assert response.json()["user"]["isVerified"] is False

    assert client.get(f"/api/auth/verify-email/{'0' * 64}").status_code == 400
    verify = client.get(f"/api/auth/verify-email/{notifier.last_token('a@x.com')}")
    assert verify.status_code == 200

    login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert login.status_code == 200
    assert login.json()["user"]["isVerified"] is True
    headers = {"Authorization": f"Bearer {login.json()['token']}"}

    completed = client.put("/api/auth/complete-profile", headers=headers, json={"contributorProfile": {"bio": "hi"}})
    assert completed.status_code == 200
    assert completed.json()["user"]["profileCompleted"] is True
    assert completed.json()["user"]["contributorProfile"]["bio"] == "hi"
