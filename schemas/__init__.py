from schemas.chunk import Chunk
from schemas.answer import AskResult
