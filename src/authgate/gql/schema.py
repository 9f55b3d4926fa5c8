"""GraphQL SDL for the account API.

Field names are camelCase here; the executable schema is built with
convert_names_case=True, so resolvers and ORM attributes stay snake_case.
"""

type_defs = """
scalar DateTime
scalar Upload

schema {
  query: Query
  mutation: Mutation
  subscription: Subscription
}

type User {
  id: Int
  fullname: String!
  email: String!
  avatarUrl: String
  createdAt: DateTime
  updatedAt: DateTime
}

type RegisterResponse {
  user: User
}

type LoginResponse {
  user: User!
}

type Session {
  userId: Int!
  displayName: String
}

input RegisterInput {
  fullname: String!
  email: String!
  password: String!
  confirmPassword: String!
}

input LoginInput {
  email: String!
  password: String!
}

type Query {
  hello: String!
  "Requires a valid access_token cookie."
  me: User!
}

type Mutation {
  register(registerInput: RegisterInput!): RegisterResponse!
  login(loginInput: LoginInput!): LoginResponse!
  "Reads the refresh_token cookie and sets a new access_token cookie."
  refreshToken: String!
  "Clears both auth cookies."
  logout: String!
  "Requires a valid access_token cookie."
  updateProfile(fullname: String, file: Upload): User!
}

type Subscription {
  "Identity bound to this connection at handshake time."
  session: Session!
}
"""
