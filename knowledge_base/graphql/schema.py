"""
GraphQL SDL for the knowledge base API, exported as ``type_defs``.

Field and argument names are camelCase on the wire; the executable schema
is built with ``convert_names_case=True`` so resolvers and input dicts use
snake_case.
"""

type_defs = """
schema {
  query: Query
  mutation: Mutation
}

type Query {
  hello: String!
  me: User
  users: [User!]!
  user(id: ID!): User

  articles(limit: Int = 10, offset: Int = 0, isPublished: Boolean): [Article!]!
  article(id: ID, slug: String): Article

  categories: [Category!]!
  category(id: ID, slug: String): Category

  tags: [Tag!]!
  tag(id: ID, slug: String): Tag
}

type Mutation {
  # Auth
  register(input: RegisterInput!): AuthPayload!
  login(input: LoginInput!): AuthPayload!

  # Users (admin)
  updateUser(id: ID!, input: UpdateUserInput!): User!
  deleteUser(id: ID!): Boolean!

  # Articles
  createArticle(input: CreateArticleInput!): Article!
  updateArticle(id: ID!, input: UpdateArticleInput!): Article!
  deleteArticle(id: ID!): Boolean!
  publishArticle(id: ID!): Article!

  # Categories
  createCategory(input: CreateCategoryInput!): Category!
  updateCategory(id: ID!, input: UpdateCategoryInput!): Category!
  deleteCategory(id: ID!): Boolean!

  # Tags
  createTag(input: CreateTagInput!): Tag!
  updateTag(id: ID!, input: UpdateTagInput!): Tag!
  deleteTag(id: ID!): Boolean!

  # Comments
  createComment(input: CreateCommentInput!): Comment!
  deleteComment(id: ID!): Boolean!
}

enum UserRole {
  ADMIN
  EDITOR
  VIEWER
}

type User {
  id: ID!
  email: String!
  username: String!
  name: String
  role: UserRole!
  createdAt: String!
  updatedAt: String!
  articles: [Article!]!
  comments: [Comment!]!
}

type Article {
  id: ID!
  title: String!
  slug: String!
  content: String!
  excerpt: String
  isPublished: Boolean!
  publishedAt: String
  createdAt: String!
  updatedAt: String!
  author: User!
  category: Category
  tags: [Tag!]!
  comments: [Comment!]!
}

type Category {
  id: ID!
  name: String!
  slug: String!
  description: String
  createdAt: String!
  updatedAt: String!
  articles: [Article!]!
}

type Tag {
  id: ID!
  name: String!
  slug: String!
  createdAt: String!
  updatedAt: String!
  articles: [Article!]!
}

type Comment {
  id: ID!
  content: String!
  createdAt: String!
  updatedAt: String!
  article: Article!
  author: User!
}

type AuthPayload {
  token: String!
  user: User!
}

input RegisterInput {
  email: String!
  username: String!
  password: String!
  name: String
}

input LoginInput {
  email: String!
  password: String!
}

input UpdateUserInput {
  email: String
  username: String
  name: String
  role: UserRole
}

input CreateArticleInput {
  title: String!
  content: String!
  excerpt: String
  categoryId: ID
  tagIds: [ID!]
}

input UpdateArticleInput {
  title: String
  content: String
  excerpt: String
  categoryId: ID
  tagIds: [ID!]
}

input CreateCategoryInput {
  name: String!
  description: String
}

input UpdateCategoryInput {
  name: String
  description: String
}

input CreateTagInput {
  name: String!
}

input UpdateTagInput {
  name: String!
}

input CreateCommentInput {
  content: String!
  articleId: ID!
}
"""
