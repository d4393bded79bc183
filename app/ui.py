# Run from project root: streamlit run app/ui.py
# UI talks to backend API (POST /api/chat, GET /api/catalog, GET /api/get-cart). The access token is sent as a bearer token so the agent knows who you are.

import os

import requests
import streamlit as st

# Backend config
API_BASE = os.environ.get("API_BASE", "http://localhost:8000")

st.title("Shopping Assistant")

# Identity: Auth0 access token (for /userinfo) and the user id whose cart is shown
with st.sidebar:
    st.subheader("Account")
    access_token = st.text_input("Access token", type="password", key="access_token")
    user_id = st.text_input("User id (sub)", key="user_id", help="Used to show your cart below.")

    st.subheader("Cart")
    if user_id:
        try:
            r = requests.get(f"{API_BASE}/api/get-cart", params={"userId": user_id}, timeout=10)
            if r.ok:
                cart = r.json().get("cart") or {}
                items = cart.get("items") or []
                if items:
                    for item in items:
                        st.caption(f"  • {item.get('quantity')} x {item.get('id')} (${item.get('totalPrice', 0):.2f})")
                    st.caption(f"Total: {cart.get('totalItems', 0)} items, ${cart.get('totalValue', 0):.2f}")
                else:
                    st.caption("Your cart is empty.")
            else:
                st.caption("Could not load cart.")
        except requests.RequestException:
            st.caption("Backend not reachable — start the API first.")
    else:
        st.caption("Enter your user id to see your cart.")

# Browse the catalog without going through the agent
with st.expander("Browse catalog"):
    search = st.text_input("Search", key="catalog_search")
    try:
        r = requests.get(f"{API_BASE}/api/catalog", params={"search": search} if search else {}, timeout=10)
        if r.ok:
            products = r.json().get("products") or []
            for p in products:
                stock = "" if p.get("inStock") else " (out of stock)"
                st.caption(f"`{p.get('id')}` {p.get('name')} — ${p.get('price')} · {p.get('category')}{stock}")
            if not products:
                st.caption("No products found.")
        else:
            st.caption("Could not load catalog.")
    except requests.RequestException:
        st.caption("Backend not reachable — start the API first.")

st.divider()
st.subheader("Chat")

if "messages" not in st.session_state:
    st.session_state.messages = []
if st.button("New chat", key="new_chat"):
    st.session_state.messages = []
    st.rerun()

for msg in st.session_state.messages:
    with st.chat_message(msg["role"]):
        st.markdown(msg["content"])
        if msg.get("authorization"):
            st.caption(msg["authorization"])

# Purchases wait for approval on the user's device, so the request can take a while
if st.session_state.get("pending_query"):
    with st.chat_message("assistant"):
        thinking_placeholder = st.empty()
        thinking_placeholder.caption("Thinking... (approve purchases on your phone when asked)")
        answer = ""
        authorization = ""
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
        payload = {"messages": [{"role": m["role"], "content": m["content"]} for m in st.session_state.messages]}
        try:
            r = requests.post(f"{API_BASE}/api/chat", json=payload, headers=headers, timeout=120)
            thinking_placeholder.empty()
            if r.ok:
                data = r.json()
                answer = data.get("message") or "No answer."
                st.markdown(answer)
                status = data.get("authorizationStatus")
                if status:
                    authorization = f"Purchase authorization: {status}"
                    if data.get("authorizationMessage"):
                        authorization += f" — {data['authorizationMessage']}"
                    st.caption(authorization)
            else:
                answer = f"Error: {r.status_code} — {r.text[:200]}"
                st.error(answer)
        except requests.RequestException as e:
            answer = f"Connection failed: {e}"
            thinking_placeholder.empty()
            st.error(answer)
        st.session_state.messages.append({"role": "assistant", "content": answer, "authorization": authorization})
    del st.session_state["pending_query"]
    st.rerun()

if prompt := st.chat_input("Ask for products, add items to your cart, or check out"):
    st.session_state.messages.append({"role": "user", "content": prompt})
    st.session_state.pending_query = prompt
    st.rerun()
