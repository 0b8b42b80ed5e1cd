from .generate_usecase import GenerateUseCase

__all__ = ["GenerateUseCase"]
