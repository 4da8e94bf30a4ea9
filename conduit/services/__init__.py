# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business rules and database access for a single aggregate:
#
#   user_service     - identity lookup (username -> user id)
#   article_service  - listing, feed, CRUD and favorites for Article
#   comment_service  - list / add / delete comments on an Article
#   profile_service  - profiles and follow edges between users
#   tag_service      - popular tag listing (cached)
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Read paths take the requesting viewer's
# username (or None) explicitly; nothing is read from ambient state.
