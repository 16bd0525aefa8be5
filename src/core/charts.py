# src/core/charts.py
import io
from typing import List, Union

import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker

from src.core.models import Boleto, STATUS_PENDING

plt.style.use('seaborn-v0_8-darkgrid')
plt.rcParams['font.family'] = 'sans-serif'
plt.rcParams['font.size'] = 10
plt.rcParams['axes.labelsize'] = 12
plt.rcParams['axes.titlesize'] = 14

COLORS = ['#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd', '#8c564b', '#e377c2', '#7f7f7f', '#bcbd22', '#17becf']


def pending_by_category(boletos: List[Boleto]) -> pd.Series:
    """Total pendente por categoria, do maior para o menor."""
    rows = [{"category": b.category, "amount": b.amount} for b in boletos if b.status == STATUS_PENDING]
    df = pd.DataFrame(rows, columns=["category", "amount"])
    if df.empty:
        return pd.Series(dtype=float)
    return df.groupby("category")["amount"].sum().sort_values(ascending=False)


def generate_pending_by_category_chart(boletos: List[Boleto]) -> Union[io.BytesIO, None]:
    """Gráfico de barras com o total a pagar por categoria. None se não houver pendências."""
    totals = pending_by_category(boletos)
    if totals.empty:
        return None

    fig, ax = plt.subplots(figsize=(10, 6))
    totals.plot(kind='bar', ax=ax, color=COLORS[:len(totals)])
    ax.set_title('Total a Pagar por Categoria')
    ax.set_xlabel('Categoria')
    ax.set_ylabel('Valor (R$)')
    ax.yaxis.set_major_formatter(mticker.FormatStrFormatter('R$%.2f'))
    plt.xticks(rotation=45, ha='right')

    for i, value in enumerate(totals):
        ax.text(i, value, f'R${value:.2f}', ha='center', va='bottom', fontsize=9)

    plt.tight_layout()
    buffer = io.BytesIO()
    plt.savefig(buffer, format='png')
    buffer.seek(0)
    plt.close(fig)
    return buffer
