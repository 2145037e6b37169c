from typing import List, Sequence


def split_batches(rows: Sequence, max_batch_size: int) -> List[list]:
    """
    Divide las filas en lotes contiguos de como mucho ``max_batch_size`` filas.

    Se conserva el orden original y el último lote contiene el resto. Nunca se
    genera un lote vacío: sin filas no hay lotes. La secuencia de entrada no
    se modifica.
    """
    if max_batch_size < 1:
        raise ValueError(
            f"El tamaño de lote debe ser mayor que 0 (recibido: {max_batch_size})"
        )

    return [
        list(rows[start:start + max_batch_size])
        for start in range(0, len(rows), max_batch_size)
    ]
