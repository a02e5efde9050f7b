"""
API tests package.

Endpoints are exercised through a FastAPI app built without the production
lifespan; repositories, the LLM client and the render queue are overridden.
"""
