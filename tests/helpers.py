"""GraphQL documents and small helpers shared by the API tests."""

# Avatar size cap used by the test app (bytes)
TEST_MAX_FILE_SIZE = 1024

REGISTER = """
mutation Register($input: RegisterInput!) {
  register(registerInput: $input) {
    user { id fullname email avatarUrl createdAt }
  }
}
"""

LOGIN = """
mutation Login($input: LoginInput!) {
  login(loginInput: $input) { user { id fullname email } }
}
"""

UPDATE_PROFILE = """
mutation Update($fullname: String, $file: Upload) {
  updateProfile(fullname: $fullname, file: $file) { id fullname email avatarUrl }
}
"""

ME = "query { me { id fullname email avatarUrl } }"


async def gql(client, query, variables=None):
    """POST a GraphQL operation; returns (httpx response, parsed body)."""
    r = await client.post("/graphql", json={"query": query, "variables": variables or {}})
    return r, r.json()


def register_input(email="ada@x.com", **overrides):
    data = {
        "fullname": "Ada",
        "email": email,
        "password": "longpw123",
        "confirmPassword": "longpw123",
    }
    data.update(overrides)
    return data


def error_code(body) -> str:
    return body["errors"][0]["extensions"]["code"]


def set_cookie_headers(response) -> list[str]:
    return response.headers.get_list("set-cookie")
