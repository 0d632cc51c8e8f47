# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single aggregate:
#
#   user_service      registration, login, admin CRUD for User
#   article_service   CRUD + publish + cached public reads for Article
#   category_service  CRUD for Category
#   tag_service       CRUD for Tag
#   comment_service   create/list/delete for Comment
#
# All service functions accept an AsyncSession as their first argument
# and return plain dicts, so the GraphQL layer controls the transaction
# boundary via the ``get_db`` dependency and never touches ORM instances.
# Authorization is the caller's job: services assume it already happened.
