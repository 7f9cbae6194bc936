"""Streamlit UI for scoring an essay answer against a model answer."""
from __future__ import annotations

import os
from typing import Any, Dict

import requests
import streamlit as st
from dotenv import load_dotenv

load_dotenv()

DEFAULT_API = "http://localhost:8000"
API_BASE = os.getenv("BACKEND_URL") or os.getenv("ESSAY_API_BASE")
if not API_BASE:
    try:
        API_BASE = st.secrets["api_base"]
    except Exception:  # secrets file optional
        API_BASE = DEFAULT_API

st.set_page_config(page_title="Essay Answer Assessment", layout="wide")
st.title("📝 Essay Answer Assessment")

st.sidebar.header("Question")
question_text = st.sidebar.text_area("Question text", height=120)
difficulty = st.sidebar.selectbox("Difficulty", ["EASY", "MEDIUM", "HARD"], index=1)
max_marks = st.sidebar.number_input("Max marks", min_value=0.1, value=10.0, step=0.5)

col_reference, col_answer = st.columns(2)
with col_reference:
    reference = st.text_area("Model answer", height=260)
with col_answer:
    answer = st.text_area("Student answer", height=260)

if st.button("Assess", type="primary"):
    if not reference.strip():
        st.warning("Please provide a model answer first.")
    else:
        payload: Dict[str, Any] = {
            "studentAnswer": answer,
            "correctAnswer": reference,
            "maxMarks": max_marks,
            "questionData": {"text": question_text, "difficulty": difficulty, "type": "ESSAY", "marks": max_marks},
        }
        with st.spinner("Scoring answer…"):
            resp = requests.post(f"{API_BASE}/assess", json=payload, timeout=60)
        if resp.ok:
            data = resp.json()
            col1, col2, col3 = st.columns(3)
            col1.metric("Score", f"{data['totalScore']} / {max_marks:g}")
            col2.metric("Percentage", f"{data['percentage']}%")
            col3.metric("Grade", f"{data['grade']} ({data['band']})")
            st.subheader(data["assessment"])
            st.write(data["feedback"])

            st.subheader("Dimension breakdown")
            for name, score in data["detailedBreakdown"].items():
                ratio = score["score"] / score["maxScore"] if score["maxScore"] else 0.0
                st.progress(min(max(ratio, 0.0), 1.0), text=f"{name}: {score['score']} / {score['maxScore']}")

            analysis = data["detailedAnalysis"]
            st.subheader("Analysis")
            st.json(analysis)
            if analysis.get("degradedDimensions"):
                st.info("Some dimensions fell back to a neutral score: " + ", ".join(analysis["degradedDimensions"]))
        else:
            st.error(f"Assessment failed: {resp.status_code} – {resp.text}")

st.caption("API base: %s" % API_BASE)
