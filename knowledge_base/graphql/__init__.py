from ariadne import make_executable_schema

from knowledge_base.graphql.resolvers import bindables
from knowledge_base.graphql.schema import type_defs

schema = make_executable_schema(type_defs, *bindables, convert_names_case=True)
