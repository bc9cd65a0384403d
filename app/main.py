"""
Streamlit Frontend for the PER/DCOMP Tracker

DESIGN PRINCIPLES:
1. One list, one set of filters: stats, table and exports all show
   the same filtered view
2. Clear error messages; nothing fails silently
3. Destructive actions (delete, clear) ask for confirmation
4. Storage problems are warnings, never blockers

The components (repository, flows) are cached per server process, so the
collection survives reruns and is written to the local store on every change.
"""

import asyncio
from datetime import date, datetime, time

import streamlit as st

from perdcomp.config import get_settings, validate_all_settings
from perdcomp.exporters import BackupParseError, EmptyExportError
from perdcomp.importers import OrderImportError
from perdcomp.models.order import (
    DOCUMENT_TYPE_OPTIONS,
    FilingStatus,
    FilterQuery,
    ManualEntry,
    ViewType,
)
from perdcomp.orchestrator import AppComponents, create_app_components
from perdcomp.queries import (
    PAGE_SIZE_OPTIONS,
    aggregate,
    clamp_page,
    filter_orders,
    paginate,
    view_fingerprint,
)
from perdcomp.utils import format_currency, format_date
from perdcomp.validation import RecordValidationError


# Page configuration
st.set_page_config(
    page_title="Gestor PER/DCOMP",
    page_icon="📑",
    layout="wide",
    initial_sidebar_state="expanded",
)

VIEW_LABELS = {
    ViewType.ALL: "Todos",
    ViewType.COMPENSATION: "Compensações (DCOMP)",
    ViewType.RESTITUTION: "Restituições / Ressarcimentos",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def show_persistence_warning(components: AppComponents):
    warning = components.repository.persistence_warning
    if warning:
        st.warning(f"⚠️ {warning}")


def main():
    """Main application entry point."""
    components = get_components()

    st.sidebar.title("📑 Gestor PER/DCOMP")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navegar para:",
        ["📋 Pedidos", "📤 Importar", "✍️ Novo Manual", "💾 Backup & Opções", "⚙️ Configurações"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(f"**Registros salvos:** {len(components.repository)}")

    show_persistence_warning(components)

    if page == "📋 Pedidos":
        render_orders_page(components)
    elif page == "📤 Importar":
        render_import_page(components)
    elif page == "✍️ Novo Manual":
        render_manual_page(components)
    elif page == "💾 Backup & Opções":
        render_backup_page(components)
    elif page == "⚙️ Configurações":
        render_settings_page(components)


# =============================================================================
# ORDERS PAGE
# =============================================================================

FILTER_KEYS = ("filter_search", "filter_start", "filter_end", "filter_view")


def reset_filters():
    # Dropping the widget state brings every filter back to its default
    for key in FILTER_KEYS:
        st.session_state.pop(key, None)


def render_filters() -> FilterQuery:
    col1, col2, col3, col4, col5 = st.columns([3, 2, 2, 3, 1])

    with col1:
        search_term = st.text_input(
            "Buscar",
            placeholder="Número PER/DCOMP ou banco",
            key="filter_search",
        )
    with col2:
        start_date = st.date_input(
            "Data inicial", value=None, format="DD/MM/YYYY", key="filter_start"
        )
    with col3:
        end_date = st.date_input(
            "Data final", value=None, format="DD/MM/YYYY", key="filter_end"
        )
    with col4:
        view_type = st.radio(
            "Visualização",
            options=list(ViewType),
            format_func=lambda v: VIEW_LABELS[v],
            horizontal=True,
            key="filter_view",
        )
    with col5:
        st.button("Limpar filtros", on_click=reset_filters)

    return FilterQuery(
        search_term=search_term or "",
        start_date=start_date,
        end_date=end_date,
        view_type=view_type,
    )


def render_stats(filtered):
    stats = aggregate(filtered)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Compensações", format_currency(stats.total_compensated))
    col2.metric("Restituições", format_currency(stats.total_restitution))
    col3.metric(
        "Recebido",
        format_currency(stats.total_paid),
        help=f"{stats.paid_count} de {stats.total_count} pedidos baixados",
    )
    col4.metric("A receber", format_currency(stats.total_pending))
    st.caption(f"Total bruto (compensado + a receber): {format_currency(stats.gross_total)}")


def current_page(query: FilterQuery, page_size: int, pages: int) -> int:
    """Keep the page number per query; a new query or page size starts at 1."""
    signature = (query.signature(), page_size)
    if st.session_state.get("list_signature") != signature:
        st.session_state.list_signature = signature
        st.session_state.list_page = 1
    st.session_state.list_page = clamp_page(st.session_state.get("list_page", 1), pages)
    return st.session_state.list_page


def render_orders_page(components: AppComponents):
    """Render the filtered, paginated order list."""
    st.title("📋 Pedidos")

    query = render_filters()
    filtered = filter_orders(components.repository.orders, query)

    render_stats(filtered)
    st.markdown("---")

    render_downloads(components, filtered, query)

    if not filtered:
        st.info("Nenhum pedido encontrado. Importe uma planilha ou XML na página 'Importar'.")
        return

    settings = get_settings().app
    default_size = (
        settings.default_page_size
        if settings.default_page_size in PAGE_SIZE_OPTIONS else PAGE_SIZE_OPTIONS[0]
    )
    page_size = st.selectbox(
        "Itens por página",
        options=PAGE_SIZE_OPTIONS,
        index=PAGE_SIZE_OPTIONS.index(default_size),
    )

    pages = paginate(filtered, 1, page_size).total_pages
    page_number = current_page(query, page_size, pages)
    page = paginate(filtered, page_number, page_size)

    render_table(components, page.items)

    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        if st.button("◀ Anterior", disabled=page_number <= 1):
            st.session_state.list_page = page_number - 1
            st.rerun()
    with col2:
        st.markdown(
            f"<div style='text-align:center'>Página {page_number} de {page.total_pages} "
            f"({len(filtered)} registros)</div>",
            unsafe_allow_html=True,
        )
    with col3:
        if st.button("Próxima ▶", disabled=page_number >= page.total_pages):
            st.session_state.list_page = page_number + 1
            st.rerun()

    render_edit_form(components, filtered)


def render_table(components: AppComponents, orders):
    rows = [
        {
            "id": order.id,
            "PER/DCOMP": order.filing_number,
            "Transmissão": format_date(order.transmission_date),
            "Crédito": order.credit_type,
            "Documento": order.document_type,
            "Situação": order.status,
            "Valor": format_currency(order.value),
            "Pago": order.is_paid,
            "Banco": order.bank,
        }
        for order in orders
    ]

    edited = st.data_editor(
        rows,
        key=f"orders_table_{st.session_state.get('list_page', 1)}",
        hide_index=True,
        use_container_width=True,
        column_config={"id": None},
        disabled=["PER/DCOMP", "Transmissão", "Crédito", "Documento", "Situação", "Valor"],
    )

    # Apply inline edits of the two editable columns
    changed = False
    for before, after in zip(rows, edited):
        if after["Pago"] != before["Pago"]:
            components.record_flow.set_paid(before["id"], bool(after["Pago"]))
            changed = True
        if (after["Banco"] or "") != before["Banco"]:
            components.record_flow.set_bank(before["id"], after["Banco"] or "")
            changed = True
    if changed:
        st.rerun()


def render_edit_form(components: AppComponents, orders):
    with st.expander("✏️ Editar ou excluir um pedido"):
        selected = st.selectbox(
            "Pedido",
            options=[order.id for order in orders],
            format_func=lambda oid: next(
                f"{o.filing_number} ({format_date(o.transmission_date)})"
                for o in orders if o.id == oid
            ),
        )
        order = components.repository.get(selected)
        if order is None:
            return

        with st.form(f"edit_{order.id}"):
            col1, col2 = st.columns(2)
            with col1:
                filing_number = st.text_input("PER/DCOMP", value=order.filing_number)
                transmission_date = st.date_input(
                    "Data de Transmissão",
                    value=order.transmission_date.date(),
                    format="DD/MM/YYYY",
                )
                credit_type = st.text_input("Tipo de Crédito", value=order.credit_type)
                document_type = st.text_input("Tipo de Documento", value=order.document_type)
            with col2:
                status = st.text_input("Situação", value=order.status)
                value = st.number_input("Valor (R$)", value=float(order.value), step=0.01, format="%.2f")
                is_paid = st.checkbox("Baixado / Pago", value=order.is_paid)
                bank = st.text_input("Banco", value=order.bank)

            if st.form_submit_button("💾 Salvar alterações", type="primary"):
                components.record_flow.update_record(order.model_copy(update={
                    "filing_number": filing_number.strip(),
                    "transmission_date": datetime.combine(transmission_date, time.min),
                    "credit_type": credit_type.strip(),
                    "document_type": document_type.strip(),
                    "status": status.strip(),
                    "value": value,
                    "is_paid": is_paid,
                    "bank": bank.strip(),
                }))
                st.success("Pedido atualizado.")
                st.rerun()

        confirm = st.checkbox("Confirmo que desejo excluir este registro permanentemente")
        if st.button("🗑️ Excluir pedido", disabled=not confirm):
            components.record_flow.delete_record(order.id)
            st.success("Pedido excluído.")
            st.rerun()


def render_downloads(components: AppComponents, filtered, query: FilterQuery):
    """
    Generate on click, then offer the file; exports are not rebuilt on every rerun.

    A generated file is only offered while the filters and records it was
    built from are unchanged.
    """
    fingerprint = view_fingerprint(query, filtered)
    col1, col2 = st.columns(2)
    for column, kind, label, export in (
        (col1, "xlsx", "📊 Exportar Excel", components.export_flow.spreadsheet),
        (col2, "pdf", "📄 Exportar PDF", components.export_flow.report),
    ):
        state_key = f"download_{kind}"
        ready = st.session_state.get(state_key)
        if ready and ready[0] != fingerprint:
            st.session_state.pop(state_key)

        with column:
            if st.button(label, key=f"export_{kind}"):
                try:
                    filename, content = export(filtered, query.view_type)
                    st.session_state[state_key] = (fingerprint, filename, content)
                except EmptyExportError as e:
                    st.session_state.pop(state_key, None)
                    st.info(str(e))

            ready = st.session_state.get(state_key)
            if ready:
                _, filename, content = ready
                st.download_button(f"⬇️ Baixar {filename}", data=content, file_name=filename)


# =============================================================================
# IMPORT PAGE
# =============================================================================

def render_import_page(components: AppComponents):
    """Render the file import page."""
    st.title("📤 Importar")
    settings = get_settings().app
    st.markdown(
        "Envie uma planilha (.xlsx) com as colunas PER/DCOMP, Data de Transmissão, "
        "Tipo de Crédito, Tipo de Documento, Situação e Valor, ou um arquivo XML de PER/DCOMP."
    )

    uploaded_file = st.file_uploader(
        "Escolha o arquivo",
        type=settings.supported_formats_list,
        help=f"Tamanho máximo: {settings.max_upload_size_mb} MB",
    )

    if uploaded_file and st.button("📥 Importar arquivo", type="primary"):
        with st.spinner("Processando arquivo..."):
            try:
                result = run_async(
                    components.import_flow.import_file(
                        filename=uploaded_file.name,
                        content=uploaded_file.getvalue(),
                    )
                )
            except OrderImportError as e:
                st.error(f"❌ {e}")
                return

        st.success(f"✅ {result.count} registro(s) importado(s) de {result.filename}.")
        if result.persistence_warning:
            st.warning(f"⚠️ {result.persistence_warning}")


# =============================================================================
# MANUAL ENTRY PAGE
# =============================================================================

def render_manual_page(components: AppComponents):
    """Render the manual entry form."""
    st.title("✍️ Novo Pedido Manual")

    with st.form("manual_entry", clear_on_submit=False):
        col1, col2 = st.columns(2)
        with col1:
            filing_number = st.text_input("Número PER/DCOMP *")
            transmission_date = st.date_input(
                "Data de Transmissão *", value=date.today(), format="DD/MM/YYYY"
            )
            credit_type = st.text_input("Tipo de Crédito", placeholder="IPI, PIS, COFINS...")
            document_type = st.selectbox("Tipo de Documento", options=DOCUMENT_TYPE_OPTIONS)
        with col2:
            status = st.selectbox(
                "Situação",
                options=list(FilingStatus),
                format_func=lambda s: s.value,
            )
            value = st.number_input("Valor (R$) *", value=0.0, step=0.01, format="%.2f")
            is_paid = st.checkbox("Já baixado / pago")
            bank = st.text_input("Banco")

        submitted = st.form_submit_button("💾 Salvar pedido", type="primary")

    if not submitted:
        return

    entry = ManualEntry(
        filing_number=filing_number,
        transmission_date=transmission_date,
        credit_type=credit_type,
        document_type=document_type,
        status=status,
        value=value,
        is_paid=is_paid,
        bank=bank,
    )

    try:
        record, result = components.record_flow.create_manual_record(entry)
    except RecordValidationError as e:
        for message in e.result.messages:
            st.error(message)
        return

    st.success(f"✅ Pedido {record.filing_number} salvo.")
    for issue in result.issues:
        st.warning(issue.message)


# =============================================================================
# BACKUP PAGE
# =============================================================================

def render_backup_page(components: AppComponents):
    """Render backup, restore and clear options."""
    st.title("💾 Backup & Opções")

    st.markdown("### Exportar backup")
    fingerprint = view_fingerprint(FilterQuery(), components.repository.orders)
    ready = st.session_state.get("download_backup")
    if ready and ready[0] != fingerprint:
        st.session_state.pop("download_backup")
    if st.button("📦 Gerar backup"):
        st.session_state.download_backup = (fingerprint, *components.export_flow.backup())
    if st.session_state.get("download_backup"):
        _, filename, content = st.session_state.download_backup
        st.download_button(
            f"⬇️ Baixar {filename}",
            data=content,
            file_name=filename,
            mime="application/json",
        )

    st.markdown("---")
    st.markdown("### Restaurar backup")
    st.caption("Os registros do arquivo são adicionados antes dos atuais; nada é substituído.")
    backup_file = st.file_uploader("Arquivo de backup", type=["json"])
    if backup_file and st.button("♻️ Restaurar"):
        try:
            count = components.export_flow.restore(
                backup_file.getvalue().decode("utf-8", errors="replace")
            )
        except BackupParseError as e:
            st.error(f"❌ {e}")
        else:
            st.success(f"✅ {count} registro(s) restaurado(s).")

    st.markdown("---")
    st.markdown("### Limpar banco local")
    confirm = st.checkbox("Apagar todos os dados registrados localmente")
    if st.button("🗑️ Limpar Banco Local", disabled=not confirm):
        removed = components.record_flow.clear_all()
        st.success(f"{removed} registro(s) removido(s).")


# =============================================================================
# SETTINGS PAGE
# =============================================================================

def render_settings_page(components: AppComponents):
    """Render the settings page."""
    st.title("⚙️ Configurações")

    st.markdown("### Status da configuração")
    status = validate_all_settings()

    sections = [
        ("Gemini (extração de XML)", "gemini"),
        ("Armazenamento local", "storage"),
        ("Aplicação", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name}")
        else:
            error = status.get(f"{key}_error", "Não configurado")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Atividade recente")
    events = components.audit_logger.recent_events(limit=20)
    if not events:
        st.caption("Nenhuma atividade registrada nesta sessão.")
    for event in events:
        st.markdown(
            f"- `{event.timestamp:%d/%m/%Y %H:%M:%S}` {event.description}"
        )

    st.markdown("---")
    st.markdown(
        "Para configurar a aplicação, crie um arquivo `.env` com suas chaves. "
        "Veja `.env.example` para as variáveis disponíveis."
    )


if __name__ == "__main__":
    main()
