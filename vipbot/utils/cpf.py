"""
Gerador de CPF aleatório com dígitos verificadores válidos.

O gateway valida o formato do documento, mas o bot não coleta o CPF real do
cliente. O número gerado só precisa passar na validação.
"""
import random


def _check_digit(digits):
    weight = len(digits) + 1
    total = sum(d * (weight - i) for i, d in enumerate(digits))
    rest = (total * 10) % 11
    return 0 if rest == 10 else rest


def generate_cpf(rng=None) -> str:
    """Retorna um CPF de 11 dígitos, sem pontuação"""
    rng = rng or random
    digits = [rng.randint(0, 9) for _ in range(9)]
    digits.append(_check_digit(digits))
    digits.append(_check_digit(digits))
    return ''.join(str(d) for d in digits)
